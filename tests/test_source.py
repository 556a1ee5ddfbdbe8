"""Tests for FASTA loading, NCBI report parsing and cell construction."""

import gzip
import json

import pytest

from tirpsim.simulate.tirp.models import Cell, Genome, Replicon, RepliconDataError, RepliconKind
from tirpsim.simulate.tirp.source import (
    assembly_accession_for,
    build_cells,
    classify_from_header,
    discover_genomes,
    load_assembly_report,
    load_genome,
    load_genomes,
    load_sequence_report,
    parse_fasta,
)

ACCESSION = "GCF_000005845.2"


def _write_jsonl(path, rows):
    with open(path, "w") as f:
        for row in rows:
            f.write(json.dumps(row) + "\n")


@pytest.fixture
def ncbi_dataset(tmp_path):
    """Minimal NCBI Datasets download with one chromosome and one plasmid."""
    data = tmp_path / "ncbi_dataset" / "data"
    genome_dir = data / ACCESSION
    genome_dir.mkdir(parents=True)

    fasta = genome_dir / f"{ACCESSION}_ASM584v2_genomic.fna"
    fasta.write_text(
        ">NC_000913.3 Escherichia coli K-12 chromosome, complete genome\n"
        + "ACGT" * 100 + "\n" + "GGCC" * 50 + "\n"
        + ">NC_999999.1 unnamed element\n"
        + "AATT" * 60 + "\n"
    )
    (genome_dir / "cds_from_genomic.fna").write_text(">cds1\nATG\n")

    _write_jsonl(genome_dir / "sequence_report.jsonl", [
        {"genbankAccession": "U00096.3", "refseqAccession": "NC_000913.3",
         "assignedMoleculeLocationType": "Chromosome", "length": 600},
        {"genbankAccession": "CP999999.1", "refseqAccession": "NC_999999.1",
         "assignedMoleculeLocationType": "Plasmid", "length": 240},
    ])
    _write_jsonl(data / "assembly_data_report.jsonl", [
        {"accession": ACCESSION,
         "organism": {"organismName": "Escherichia coli",
                      "infraspecificNames": {"strain": "K-12"}}},
    ])
    return tmp_path, fasta


class TestParseFasta:

    def test_records_in_file_order(self, tmp_path):
        path = tmp_path / "g.fa"
        path.write_text(">chr1 main chromosome\nACGT\nacgt\n\n>p1\nGGGG\n")

        records = parse_fasta(path)

        assert [r.name for r in records] == ["chr1", "p1"]
        assert records[0].description == "main chromosome"
        assert records[0].sequence == "ACGTACGT"
        assert records[1].description == ""

    def test_gzip_input(self, tmp_path):
        path = tmp_path / "g.fa.gz"
        with gzip.open(path, "wt") as f:
            f.write(">chr1\nACGTACGT\n")

        records = parse_fasta(path)
        assert records[0].sequence == "ACGTACGT"

    def test_non_standard_bases_become_n(self, tmp_path):
        path = tmp_path / "g.fa"
        path.write_text(">chr1\nACGRYT\n")

        assert parse_fasta(path)[0].sequence == "ACGNNT"

    def test_empty_sequence_skipped(self, tmp_path):
        path = tmp_path / "g.fa"
        path.write_text(">empty\n>chr1\nACGT\n")

        assert [r.name for r in parse_fasta(path)] == ["chr1"]

    def test_sequence_before_header(self, tmp_path):
        path = tmp_path / "g.fa"
        path.write_text("ACGT\n>chr1\nACGT\n")

        with pytest.raises(RepliconDataError):
            parse_fasta(path)


class TestReports:

    def test_sequence_report(self, ncbi_dataset):
        _, fasta = ncbi_dataset
        kinds = load_sequence_report(fasta.parent / "sequence_report.jsonl")

        assert kinds["NC_000913.3"] is RepliconKind.CHROMOSOME
        assert kinds["U00096.3"] is RepliconKind.CHROMOSOME
        assert kinds["NC_999999.1"] is RepliconKind.PLASMID
        assert kinds["CP999999.1"] is RepliconKind.PLASMID

    def test_assembly_report(self, ncbi_dataset):
        root, _ = ncbi_dataset
        strains = load_assembly_report(root / "ncbi_dataset" / "data" / "assembly_data_report.jsonl")
        assert strains == {ACCESSION: "Escherichia coli K-12"}

    def test_assembly_report_strain_in_organism_name(self, tmp_path):
        path = tmp_path / "assembly_data_report.jsonl"
        _write_jsonl(path, [
            {"accession": "GCA_1.1",
             "organism": {"organismName": "Escherichia coli str. K-12 substr. MG1655",
                          "infraspecificNames": {"strain": "K-12 substr. MG1655"}}},
            {"accession": "GCA_2.1", "organism": {"organismName": "Klebsiella pneumoniae"}},
        ])

        strains = load_assembly_report(path)
        assert strains["GCA_1.1"] == "Escherichia coli str. K-12 substr. MG1655"
        assert strains["GCA_2.1"] == "Klebsiella pneumoniae"

    @pytest.mark.parametrize("description,expected", [
        ("Escherichia coli plasmid pO157, complete sequence", RepliconKind.PLASMID),
        ("Escherichia coli K-12 chromosome, complete genome", RepliconKind.CHROMOSOME),
        ("", RepliconKind.CHROMOSOME),
    ])
    def test_header_classification(self, description, expected):
        assert classify_from_header(description) is expected

    def test_kind_parse(self):
        assert RepliconKind.parse("plasmid") is RepliconKind.PLASMID
        assert RepliconKind.parse(" Chromosome ") is RepliconKind.CHROMOSOME
        with pytest.raises(RepliconDataError, match="Unknown replicon kind"):
            RepliconKind.parse("episome")

    def test_sequence_report_location_types(self, tmp_path):
        path = tmp_path / "sequence_report.jsonl"
        _write_jsonl(path, [
            {"refseqAccession": "NC_1.1", "assignedMoleculeLocationType": "Chromosome"},
            {"refseqAccession": "NC_2.1", "assignedMoleculeLocationType": "plasmid"},
            {"refseqAccession": "NC_3.1", "assignedMoleculeLocationType": "Mitochondrion"},
            {"refseqAccession": "NC_4.1", "assignedMoleculeLocationType": "Chloroplast"},
        ])

        kinds = load_sequence_report(path)

        assert kinds == {
            "NC_1.1": RepliconKind.CHROMOSOME,
            "NC_2.1": RepliconKind.PLASMID,
            "NC_3.1": RepliconKind.CHROMOSOME,
            "NC_4.1": RepliconKind.CHROMOSOME,
        }

    def test_sequence_report_unknown_location(self, tmp_path):
        path = tmp_path / "sequence_report.jsonl"
        _write_jsonl(path, [
            {"refseqAccession": "NC_1.1", "assignedMoleculeLocationType": "Linkage Group"},
        ])
        with pytest.raises(RepliconDataError, match="Linkage Group"):
            load_sequence_report(path)

    def test_assembly_report_whitespace_in_strain(self, tmp_path):
        path = tmp_path / "assembly_data_report.jsonl"
        _write_jsonl(path, [
            {"accession": "GCA_1.1",
             "organism": {"organismName": "Escherichia\tcoli",
                          "infraspecificNames": {"strain": "K-12\nMG1655"}}},
        ])
        assert load_assembly_report(path) == {"GCA_1.1": "Escherichia coli K-12 MG1655"}


class TestColumnSafety:
    """Names end up as TIRP/metadata columns and must not contain separators."""

    @pytest.mark.parametrize("name", ["chr\t1", "chr1\n", "chr\r1"])
    def test_replicon_name_rejected(self, name):
        with pytest.raises(RepliconDataError, match="Replicon name"):
            Replicon(name, "ACGT")

    def test_strain_name_rejected(self):
        chromosome = Replicon("chr", "A" * 200)
        with pytest.raises(RepliconDataError, match="Strain name"):
            Genome("GCA_1.1", "E. coli\tK-12", (chromosome,))
        with pytest.raises(RepliconDataError, match="Strain name"):
            Cell(1, "bad\nname", (chromosome,))

    def test_strain_from_report_is_single_column(self, ncbi_dataset):
        root, fasta = ncbi_dataset
        _write_jsonl(root / "ncbi_dataset" / "data" / "assembly_data_report.jsonl", [
            {"accession": ACCESSION,
             "organism": {"organismName": "Escherichia coli",
                          "infraspecificNames": {"strain": "K-12\tsubstr. MG1655"}}},
        ])
        genome = load_genome(fasta)
        assert genome.strain_name == "Escherichia coli K-12 substr. MG1655"


class TestLoadGenome:

    def test_ncbi_layout(self, ncbi_dataset):
        _, fasta = ncbi_dataset
        genome = load_genome(fasta)

        assert genome.accession == ACCESSION
        assert genome.strain_name == "Escherichia coli K-12"
        assert [r.name for r in genome.replicons] == ["NC_000913.3", "NC_999999.1"]
        assert [r.kind for r in genome.replicons] == [RepliconKind.CHROMOSOME, RepliconKind.PLASMID]
        assert genome.replicons[0].length == 600

    def test_plain_fasta_falls_back_to_header(self, tmp_path):
        fasta = tmp_path / "mystrain.fasta"
        fasta.write_text(">c1 chromosome\n" + "A" * 300 + "\n>p1 plasmid pX\n" + "C" * 200 + "\n")

        genome = load_genome(fasta)

        assert genome.strain_name == "mystrain"
        assert [r.kind for r in genome.replicons] == [RepliconKind.CHROMOSOME, RepliconKind.PLASMID]

    def test_accession_from_directory(self, tmp_path):
        assert assembly_accession_for(tmp_path / "GCA_000001405.29" / "genome.fna") == "GCA_000001405.29"
        assert assembly_accession_for(tmp_path / "sample.fna.gz") == "sample"

    def test_no_records(self, tmp_path):
        fasta = tmp_path / "empty.fa"
        fasta.write_text("")
        with pytest.raises(RepliconDataError):
            load_genome(fasta)


class TestDiscovery:

    def test_companion_fasta_excluded(self, ncbi_dataset):
        root, fasta = ncbi_dataset
        assert discover_genomes(root) == [fasta]

    def test_sorted_order(self, tmp_path):
        for name in ("b.fna", "a.fa", "c.fasta.gz"):
            (tmp_path / name).write_text("")
        (tmp_path / "notes.txt").write_text("")

        found = [p.name for p in discover_genomes(tmp_path)]
        assert found == ["a.fa", "b.fna", "c.fasta.gz"]

    def test_nothing_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            discover_genomes(tmp_path)

    def test_load_genomes(self, ncbi_dataset):
        root, _ = ncbi_dataset
        genomes = load_genomes(root)
        assert len(genomes) == 1
        assert genomes[0].total_length == 840


class TestBuildCells:

    def _genome(self, name):
        return Genome(name, f"strain_{name}", (Replicon("chr", "A" * 200),))

    def test_sequential_ids(self):
        cells = build_cells([self._genome("A"), self._genome("B")], cells_per_genome=2)

        assert [c.cell_id for c in cells] == [1, 2, 3, 4]
        assert [c.strain_name for c in cells] == ["strain_A"] * 2 + ["strain_B"] * 2
        assert cells[0].label == "cell#000001"

    def test_first_cell_id(self):
        cells = build_cells([self._genome("A")], first_cell_id=10)
        assert cells[0].cell_id == 10

    def test_invalid_count(self):
        with pytest.raises(ValueError):
            build_cells([self._genome("A")], cells_per_genome=0)

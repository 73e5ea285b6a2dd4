"""tnseq-pipeline: annotate mapped transposon-insertion barcodes with the genes they hit."""

__version__ = "0.1.0"

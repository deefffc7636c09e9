"""Zero-knowledge degree credentials: issuance, commitments and proofs."""

__version__ = "0.1.0"

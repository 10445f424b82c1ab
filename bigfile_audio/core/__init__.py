"""Core scanning primitives and intermediate representation.

WHY: Every extractor needs the same building blocks: exact signature
search, terminator-based boundary detection, and length-prefixed name
decoding. Keeping them here gives one source of truth for signature bytes
and heuristic constants.

HOW: signatures.py defines the immutable signature set and ScanProfile,
scanner.py finds occurrences, boundary.py finds block ends, names.py
decodes name fields, ir.py holds the asset and record dataclasses, and
errors.py the exception taxonomy.

RULES:
- Everything in core is a pure function of its inputs (no file I/O)
- ScanProfile and Signature are frozen and safe to share across threads
"""

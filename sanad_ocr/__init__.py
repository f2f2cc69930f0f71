"""Accounting cover-sheet (sanad) OCR extraction.

Runs multi-pass Tesseract OCR over scanned Persian accounting documents
and rebuilds header fields plus the ledger table of account codes and
debit/credit amounts.
"""

"""
Evidence Verification Pipeline

This package contains the complete pipeline for screenshot-based player verification:
- Image ingestion from file picker, drag-and-drop and clipboard
- Text extraction using Tesseract OCR (or OpenAI Vision)
- Name and kill-count validation rules
- Wizard state machine, verdict aggregation and result export
"""

__version__ = "1.0.0"

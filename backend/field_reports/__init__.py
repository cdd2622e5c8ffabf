"""Field report storage: project numbering and report PDF files per tenant"""

__version__ = "1.0.0"

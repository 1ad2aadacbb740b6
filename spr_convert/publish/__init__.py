"""Archive and upload of generated reports."""

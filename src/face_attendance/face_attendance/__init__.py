"""Face Attendance package.

This package is organized by feature modules (attendance, embeddings, matching,
verification, ...) with a thin Flask controller layer over service/repository layers.
"""

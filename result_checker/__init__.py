"""Result Checker API — student records and exam results over MongoDB + Redis."""

__version__ = "1.0.0"

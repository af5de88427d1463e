"""Exam room session coordinator service."""

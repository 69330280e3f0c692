"""Filesystem and text helpers."""

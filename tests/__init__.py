"""Tests for habitflow."""

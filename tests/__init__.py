"""Test suite for the shop account service."""

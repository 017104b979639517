"""
Test helper utilities for MEGASCORE testing.

This module provides reusable utilities for:
- Generating synthetic flow waveforms
- Building EDF containers in memory
"""

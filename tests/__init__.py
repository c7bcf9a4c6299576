"""Test suite for the raster_studio engine."""

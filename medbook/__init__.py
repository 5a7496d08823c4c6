"""Availability and booking engine for doctor appointments"""

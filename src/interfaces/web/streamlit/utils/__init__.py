"""Streamlit utilities."""

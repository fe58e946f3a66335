"""Streamlit dashboard and chart builders."""

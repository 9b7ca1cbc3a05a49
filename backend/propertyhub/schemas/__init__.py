"""Pydantic schemas for the PropertyHub API."""

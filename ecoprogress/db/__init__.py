"""Persistence collaborators: store protocol, PostgreSQL and in-memory stores"""

"""Upwork job catalog: paged browsing, market insights and proposal drafting"""

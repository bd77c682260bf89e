"""
Scrapline: a headless tower-defense simulation core.
"""

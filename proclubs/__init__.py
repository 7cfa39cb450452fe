"""
Pro Clubs league backend: competitions, fixtures, standings, lineups.
"""
__version__ = "0.1.0"

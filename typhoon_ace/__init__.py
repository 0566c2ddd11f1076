"""
Typhoon ACE - Western Pacific tropical cyclone season metrics

Normalizes IBTrACS best-track and JTWC b-deck fixes into storm tracks and
derives ACE, category-days, PAR entry statistics and climatology baselines.
"""

__version__ = "0.1.0"

# WorldSim scenario simulation engine
#
# Projects regional energy, water and crop outcomes under climate and
# infrastructure-policy scenarios.

__version__ = "0.1.0"

"""
risk_planner.taxonomy — closed vocabularies (StrEnum) and their rank tables.
"""

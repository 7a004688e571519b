"""
risk_planner.slo — default Service Level Objectives by journey criticality.
"""

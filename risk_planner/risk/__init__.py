"""
Risk engine: turns CUJs, SLOs and coverage into a prioritised Risk Register.

Modules
-------
matching : CoverageMatcher protocol + SuffixCoverageMatcher (default).
scorer   : determine_impact() + determine_probability() + score_cuj()
           — pure functions, no I/O.
register : build_risk_register() — sorting, top critical ids, coverage gaps.
"""

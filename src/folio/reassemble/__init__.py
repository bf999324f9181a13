"""
Reassembly of processed chunks into continuous text.
"""

from .stitcher import FALLBACK_RULE, JOIN_RULES, JoinRule, join_pair, reassemble

__all__ = ["FALLBACK_RULE", "JOIN_RULES", "JoinRule", "join_pair", "reassemble"]

"""
Permission tiers and the evaluator that maps a message author to a level.
"""

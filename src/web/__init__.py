"""
Web control surface for the vision tracker.
"""

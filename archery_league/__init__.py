"""
archery_league
Head-to-head match results for handicapped archery leagues.
"""

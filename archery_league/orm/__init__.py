from .base import Base

# Competition structure
from .competition import Competition, Stage, StageType, Round

# Competitors + reference data
from .entry import Entry, Handicap

# Match results
from .match_result import MatchResult, Score

from .rank import RankInfo

__all__ = ["RankInfo"]

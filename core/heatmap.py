from config import HEATMAP_GRID_DECIMALS
from core.segments import Segment, Visit
from dataclasses import dataclass
from utils.rounding import round_half_up


@dataclass(frozen=True)
class HeatmapCell:
    lat: float
    lng: float
    weight: int

    def to_dict(self) -> dict:
        return {'lat': self.lat, 'lng': self.lng, 'weight': self.weight}


class HeatmapAccumulator:
    """Visit density on a quantized lat/lng grid (0.1 degree cells by default)

    Routine places (HOME/WORK) and visits without coordinates are not counted.
    """

    def __init__(self, decimals: int = HEATMAP_GRID_DECIMALS):
        self.decimals = decimals
        self.cells: dict[tuple[float, float], int] = {}
        self.eligible_visits = 0

    def quantize(self, lat: float, lng: float) -> tuple[float, float]:
        return round_half_up(lat, self.decimals), round_half_up(lng, self.decimals)

    def add(self, segment: Segment):
        if not isinstance(segment, Visit) or segment.is_routine or segment.coordinates is None:
            return
        self.eligible_visits += 1
        key = self.quantize(*segment.coordinates)
        self.cells[key] = self.cells.get(key, 0) + 1

    def merge(self, other: 'HeatmapAccumulator') -> 'HeatmapAccumulator':
        for key, weight in other.cells.items():
            self.cells[key] = self.cells.get(key, 0) + weight
        self.eligible_visits += other.eligible_visits
        return self

    def cells_list(self) -> list[HeatmapCell]:
        """Every non-empty cell, in first-seen order"""
        return [HeatmapCell(lat=lat, lng=lng, weight=weight) for (lat, lng), weight in self.cells.items()]

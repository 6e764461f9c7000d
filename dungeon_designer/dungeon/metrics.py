from typing import Dict

from .events import (
    CorridorCarveCellEvent,
    CorridorPathFoundEvent,
    DoorPlacedEvent,
    GenEvent,
    GraphEdgeConsideredEvent,
    GraphLoopAddedEvent,
    RoomChosenEvent,
    RoomFallbackEvent,
    SplitChosenEvent,
    SplitSkippedEvent,
)
from .tiles import CORRIDOR, DOOR, ROOM


def init_metrics() -> Dict[str, int | float]:
    return {
        'splits_chosen': 0,
        'splits_skipped': 0,
        'rooms_placed': 0,
        'rooms_fallback': 0,
        'edges_accepted': 0,
        'edges_rejected': 0,
        'loops_added': 0,
        'corridors_planned': 0,
        'corridors_unreachable': 0,
        'astar_visited': 0,
        'carve_steps': 0,
        'doors_placed': 0,
        'room_tiles': 0,
        'corridor_tiles': 0,
        'door_tiles': 0,
        'runtime_ms': 0,
    }


def record_tiles(metrics: Dict[str, int | float], tiles: bytearray) -> None:
    metrics['room_tiles'] = tiles.count(ROOM)
    metrics['corridor_tiles'] = tiles.count(CORRIDOR)
    metrics['door_tiles'] = tiles.count(DOOR)


def record_event(metrics: Dict[str, int | float], event: GenEvent) -> None:
    """Fold one step event into the counters. Transition events carry no referent and are ignored."""
    if isinstance(event, SplitChosenEvent):
        metrics['splits_chosen'] += 1
    elif isinstance(event, SplitSkippedEvent):
        if event.node_id is not None:
            metrics['splits_skipped'] += 1
    elif isinstance(event, RoomChosenEvent):
        metrics['rooms_placed'] += 1
    elif isinstance(event, RoomFallbackEvent):
        if event.chosen is not None:
            metrics['rooms_placed'] += 1
            metrics['rooms_fallback'] += 1
    elif isinstance(event, GraphEdgeConsideredEvent):
        if event.edge is not None:
            metrics['edges_accepted' if event.accepted else 'edges_rejected'] += 1
    elif isinstance(event, GraphLoopAddedEvent):
        metrics['loops_added'] += 1
    elif isinstance(event, CorridorPathFoundEvent):
        if event.plan is not None:
            metrics['corridors_planned'] += 1
            metrics['astar_visited'] += event.plan.stats.visited
            if event.plan.stats.cost == float('inf'):
                metrics['corridors_unreachable'] += 1
    elif isinstance(event, CorridorCarveCellEvent):
        metrics['carve_steps'] += 1
    elif isinstance(event, DoorPlacedEvent):
        metrics['doors_placed'] += 1

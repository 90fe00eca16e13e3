"""Re-derive the itinerary after the trip's activity list changed."""

from .pruning import schedule_remove
from .session import PlanningSession, Schedule


async def optimize_only(session: PlanningSession) -> Schedule:
    """Re-optimize the route and schedule it, without pruning."""
    route = await session.optimize_route()
    return session.schedule(route)


async def optimize_and_schedule(session: PlanningSession) -> Schedule:
    """Re-optimize the route, schedule it and prune any overrun."""
    route = await session.optimize_route()
    return await schedule_remove(session, route)

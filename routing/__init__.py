"""Destination selection and route coordination."""

from routing.service import RouteCoordinator, RouteRequest, RouteSnapshot

__all__ = ["RouteCoordinator", "RouteRequest", "RouteSnapshot"]

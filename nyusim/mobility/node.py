"""
Node mobility handles for channel simulations.

This module provides 3-D positions, velocities and the per-node mobility
handle consumed by the channel models.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MobilityType(Enum):
    """Available node mobility patterns."""
    CONSTANT_POSITION = "constant_position"
    CONSTANT_VELOCITY = "constant_velocity"


@dataclass
class Vector:
    """3D vector with coordinates in meters (or m/s for velocities)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_sequence(cls, values) -> 'Vector':
        values = tuple(values)
        if len(values) == 2:
            return cls(float(values[0]), float(values[1]), 0.0)
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def distance_to(self, other: 'Vector') -> float:
        """Calculate the 3D distance to another position."""
        return math.sqrt((self.x - other.x)**2 + (self.y - other.y)**2 + (self.z - other.z)**2)

    def distance_2d_to(self, other: 'Vector') -> float:
        """Calculate the horizontal distance to another position."""
        return math.hypot(self.x - other.x, self.y - other.y)

    @property
    def norm(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def as_tuple(self) -> tuple:
        return (self.x, self.y, self.z)

    def __add__(self, other: 'Vector') -> 'Vector':
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: 'Vector') -> 'Vector':
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, factor: float) -> 'Vector':
        return Vector(self.x * factor, self.y * factor, self.z * factor)


class NodeMobility:
    """Position and velocity of a node, identified by a unique node id."""

    def __init__(self, node_id: int, position: Vector,
                 velocity: Optional[Vector] = None,
                 mobility_type: MobilityType = MobilityType.CONSTANT_POSITION):
        if node_id < 0:
            raise ValueError(f"Node id must be non-negative, got {node_id}")
        self.node_id = node_id
        self.position = position
        self.mobility_type = mobility_type
        if mobility_type == MobilityType.CONSTANT_POSITION:
            self.velocity = Vector()
        else:
            self.velocity = velocity if velocity is not None else Vector()

    def get_position(self) -> Vector:
        return self.position

    def get_velocity(self) -> Vector:
        return self.velocity

    def set_position(self, position: Vector):
        """Move the node to a new position."""
        self.position = position

    def update_position(self, dt: float):
        """Advance the node by dt seconds along its velocity."""
        if self.mobility_type == MobilityType.CONSTANT_POSITION:
            return
        self.set_position(self.position + self.velocity * dt)

    def distance_to(self, other: 'NodeMobility') -> float:
        return self.position.distance_to(other.position)

    def __repr__(self) -> str:
        return f"NodeMobility(id={self.node_id}, position={self.position.as_tuple()})"

"""SQLAlchemy models for the APR aggregator.

We persist three tables:
- networks: one row per configured upstream pair (unique title)
- pools: latest pool APR figures, unique per (network_id, address)
- farmings: latest eternal farming APR/TVL figures, unique per (network_id, hash)

Only the most recent value per metric is kept; every cycle overwrites it.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from src.core.database import Base


class Network(Base):
    __tablename__ = "networks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), unique=True, nullable=False)
    analytics_subgraph_url = Column(Text, nullable=False)
    farming_subgraph_url = Column(Text, nullable=False)
    api_key = Column(String(255))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<Network {self.id} {self.title}>"


class Pool(Base):
    __tablename__ = "pools"
    __table_args__ = (UniqueConstraint("network_id", "address", name="uq_pools_network_address"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    # "<token0.name> : <token1.name>", set when the pool is first seen
    title = Column(String(256), nullable=False)
    address = Column(String(42), nullable=False)
    last_apr = Column(Float)
    max_apr = Column(Float)
    network_id = Column(Integer, ForeignKey("networks.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Farming(Base):
    __tablename__ = "farmings"
    __table_args__ = (UniqueConstraint("network_id", "hash", name="uq_farmings_network_hash"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    hash = Column(String(66), unique=True, nullable=False, index=True)
    tvl = Column(Float)
    # -1 marks a farming with no active TVL
    last_apr = Column(Float)
    max_apr = Column(Float)
    network_id = Column(Integer, ForeignKey("networks.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

"""Behaviour contracts implemented by the recommenders in this package."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TrainableModel(Protocol):
    def init_model(self): ...

    def fit(self, interactions, item_attributes=None): ...

    def iterate(self): ...


@runtime_checkable
class Scorable(Protocol):
    def predict(self, user, item) -> float: ...


@runtime_checkable
class Persistable(Protocol):
    def save(self, path): ...

    @classmethod
    def load(cls, path): ...

"""
RobertsEdge/algorithms/_base.py

Dask アルゴリズムの基底クラス。
"""
from __future__ import annotations
from abc import ABC, abstractmethod
import dask.array as da


class DaskAlgorithm(ABC):
    """ラスタ近傍演算アルゴリズムの基底クラス"""

    @abstractmethod
    def process(self, arr: da.Array, **params) -> da.Array:
        """アルゴリズムのメイン処理"""
        pass

    @abstractmethod
    def get_default_params(self) -> dict:
        """デフォルトパラメータを返す"""
        pass


__all__ = ["DaskAlgorithm"]

from abc import ABC, abstractmethod
from typing import Optional


class RowStoreInterface(ABC):
    """行ストア（スプレッドシート）の抽象インターフェース

    全ての操作はリモート呼び出しで、失敗時は StoreUnavailable を送出する。
    複数の操作をまたいだ原子性はない。
    """

    @abstractmethod
    def read_range(self, range_: str) -> list[list]:
        """レンジの値を行のリストで返す（末尾の空セルは省略されうる）"""
        ...

    @abstractmethod
    def append_row(self, range_: str, row: list) -> Optional[int]:
        """テーブル末尾に1行追加し、追加された行番号を返す（不明なら None）"""
        ...

    @abstractmethod
    def update_cells(self, range_: str, values: list[list]) -> None:
        """レンジを上書きする。None のセルは変更しない"""
        ...

    @abstractmethod
    def list_sheets(self) -> list[str]:
        """シート名の一覧"""
        ...

    @abstractmethod
    def add_sheet(self, title: str) -> None:
        ...

    @abstractmethod
    def rename_sheet(self, old_title: str, new_title: str) -> None:
        ...

    def describe(self) -> dict:
        """接続先の情報（診断用）"""
        return {}

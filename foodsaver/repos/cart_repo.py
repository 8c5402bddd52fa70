# foodsaver/repos/cart_repo.py
from typing import Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from foodsaver.data.models.cart_line import CartLineModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_lines(self, buyer_id: str) -> List[CartLineModel]:
        return list(
            self.db.execute(
                select(CartLineModel)
                .where(CartLineModel.buyer_id == buyer_id)
                .order_by(CartLineModel.id)
            ).scalars()
        )

    def get_line(self, line_id: int) -> CartLineModel | None:
        return self.db.get(CartLineModel, line_id)

    def get_line_by_food(self, buyer_id: str, food_id: str) -> CartLineModel | None:
        return self.db.execute(
            select(CartLineModel).where(
                CartLineModel.buyer_id == buyer_id,
                CartLineModel.food_id == food_id,
            )
        ).scalars().first()

    def save_line(self, line: CartLineModel) -> CartLineModel:
        self.db.add(line)
        self.db.commit()
        self.db.refresh(line)
        return line

    def delete_line(self, buyer_id: str, line_id: int) -> bool:
        #already deleted -> 0 rows, not an error
        return self.delete_lines(buyer_id, [line_id]) > 0

    def delete_lines(self, buyer_id: str, line_ids: Iterable[int]) -> int:
        ids = list(line_ids)
        if not ids:
            return 0

        result = self.db.execute(
            delete(CartLineModel)
            .where(CartLineModel.buyer_id == buyer_id, CartLineModel.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

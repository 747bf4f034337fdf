#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from marketplace.data.models.user import UserModel
from marketplace.data.models.store import StoreModel
from marketplace.data.models.user_rating import UserRatingModel
from marketplace.data.models.cart import CartModel
from marketplace.data.models.cart_item import CartItemModel
from marketplace.data.models.order import OrderModel, OrderItemModel
from marketplace.data.models.review import ReviewModel, ReviewVoteModel

__all__ = [
    "UserModel",
    "StoreModel",
    "UserRatingModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "ReviewModel",
    "ReviewVoteModel",
]

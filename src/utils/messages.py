from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired when user logged, so the scren can refresh
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever a line is added, edited or removed, or the cart is cleared.
    Listened to by the cart screen and the sidebar badges.

    If posted from outside CartScreen, make sure to post at App level
    """

    bubble = True


class WishlistChangedMessage(Message):
    """
    Fired after the wishlist was replaced by the server's copy
    """

    bubble = True


class ComparisonChangedMessage(Message):
    """
    Fired when a product enters or leaves the comparison set
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when a new order is created.
    Listened to by past orders and the admin screens
    """

    bubble = True

    def __init__(self, order_id: str) -> None:
        super().__init__()
        self.order_id = order_id


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode


class LoginRequestedMessage(Message):
    """
    A guest asked to log in from the sidebar
    """

    bubble = True

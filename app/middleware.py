"""Middleware for customer context."""
from flask import session, g


def load_customer_context():
    """
    Load the shopper's customer group into g (Flask's per-request global).

    The auth collaborator stores ``customer_group_id`` in the session at
    login; anonymous shoppers have no group and get catalog prices.
    """
    g.customer_group_id = session.get('customer_group_id') or None

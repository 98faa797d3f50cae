# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for the Article aggregate:
#
#   article_service  — read + conditional upvote
#   comment_service  — append-only comments
#
# All service functions accept an AsyncSession as their first argument.
# Reads leave the transaction boundary to the ``get_db`` dependency;
# mutations commit while holding the article's lock.

"""Tests for advisory GraphQL cost estimation."""

import logging

from shopgate.cost import (
    COST_WARNING_THRESHOLD,
    CostEstimate,
    estimate_query_cost,
    warn_if_expensive,
)
from shopgate.graphql import SEARCH_PRODUCTS_QUERY


class TestEstimateQueryCost:
    """Tests for estimate_query_cost()."""

    def test_counts_selections_and_connections(self):
        """Three selection sets plus one connection field scores 5."""
        estimate = estimate_query_cost("a { b } c { d } e { edges }")
        assert estimate.field_count == 3
        assert estimate.connection_count == 1
        assert estimate.score == 5

    def test_empty_query(self):
        estimate = estimate_query_cost("")
        assert estimate == CostEstimate(field_count=0, connection_count=0)
        assert estimate.score == 0

    def test_nodes_count_as_connections(self):
        estimate = estimate_query_cost("products { nodes { id } }")
        assert estimate.connection_count == 1
        assert estimate.field_count == 2

    def test_real_document_is_cheap(self):
        assert estimate_query_cost(SEARCH_PRODUCTS_QUERY).score < COST_WARNING_THRESHOLD

    def test_deterministic(self):
        query = "orders { edges { node { id lineItems { edges { node { id } } } } } }"
        assert estimate_query_cost(query) == estimate_query_cost(query)


class TestWarnIfExpensive:
    """Tests for warn_if_expensive()."""

    def test_warns_above_threshold(self, caplog):
        query = "{" + " a { edges }" * 400 + " }"
        with caplog.at_level(logging.WARNING, logger="shopgate"):
            estimate = warn_if_expensive(query)
        assert estimate.score == 1200
        assert "may exceed cost limits" in caplog.text

    def test_silent_at_threshold(self, caplog):
        with caplog.at_level(logging.WARNING, logger="shopgate"):
            warn_if_expensive("a { b } c { d } e { edges }", threshold=5)
        assert "may exceed cost limits" not in caplog.text

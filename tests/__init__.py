"""Test suite for the probabilistic state store and its HTTP host."""

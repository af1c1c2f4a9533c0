"""
geoquestions
Resolves hide-and-seek geography questions into map boundaries and answers.
"""

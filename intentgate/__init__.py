"""
INTENT: architectural governance for code changes.

Maps changed files to declared domains, evaluates declarative policies
against them and the task's intended scope, and emits a pass / warn /
blocked verdict with structured evidence.
"""

__version__ = "2.0.0"

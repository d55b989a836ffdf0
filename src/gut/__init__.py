"""Git branching convention tool.

Features:
- Structured branch names encoding version, feature, ticket and description
- Guarded creation of version, feature and dev branches
- Buildable tag for feature branches
- Branch description metadata (author, base branch) stored in git config
- Switching between branches by pattern
"""

__version__ = "0.1.0"

"""OpsAgents command-line interface."""

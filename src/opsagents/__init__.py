"""OpsAgents - deploy and manage a web application stack on AWS ECS."""

__version__ = "0.1.0"

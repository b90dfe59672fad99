"""
Network contract, NNX backend and masked evaluation.
"""

from zerofeed.network.base import Network, copy_network
from zerofeed.network.evaluate import (
    Evaluation,
    evaluate,
    evaluate_batch,
    evaluate_single,
    mask_policy,
)
from zerofeed.network.nnx_backend import NnxNetwork

__all__ = [
    "Evaluation",
    "Network",
    "NnxNetwork",
    "copy_network",
    "evaluate",
    "evaluate_batch",
    "evaluate_single",
    "mask_policy",
]

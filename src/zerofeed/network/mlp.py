"""
Residual MLP policy/value network.

Input:
- boards: (B, *board_shape), flattened to (B, board_size)

Outputs:
- policy_logits: (B, num_actions)
- value: (B,) in [-1, 1]
"""

from __future__ import annotations

from dataclasses import dataclass

import jax.numpy as jnp
from flax import nnx

from zerofeed.network.blocks import RMSNorm, ResidualMlpBlock
from zerofeed.types import Array, PolicyValue


@dataclass(frozen=True, slots=True)
class MlpConfig:
    """Network dimensions."""

    board_size: int
    num_actions: int
    width: int
    depth: int
    mlp_ratio: int


class MlpPolicyValueNet(nnx.Module):
    """Board embedding, residual MLP trunk, policy and value heads."""

    def __init__(self, cfg: MlpConfig, *, rngs: nnx.Rngs) -> None:
        self.cfg = cfg
        self.embed = nnx.Linear(cfg.board_size, cfg.width, rngs=rngs)
        self.blocks = nnx.List(
            [
                ResidualMlpBlock(cfg.width, cfg.mlp_ratio, rngs=rngs)
                for _ in range(cfg.depth)
            ]
        )
        self.norm = RMSNorm(cfg.width, rngs=rngs)
        self.policy_head = nnx.Linear(cfg.width, cfg.num_actions, rngs=rngs)
        self.value_head = nnx.Linear(cfg.width, 1, rngs=rngs)

    def __call__(self, boards: Array) -> PolicyValue:
        """Forward pass.

        Args:
            boards: Board encodings with a leading batch axis.

        Returns:
            PolicyValue with (B, num_actions) logits and (B,) values.
        """
        batch = boards.shape[0]
        x = self.embed(boards.reshape(batch, self.cfg.board_size))
        for block in self.blocks:
            x = block(x)
        x = self.norm(x)
        policy_logits = self.policy_head(x)
        # Tanh keeps value in [-1, 1].
        value = jnp.tanh(self.value_head(x).squeeze(-1))
        return PolicyValue(policy_logits=policy_logits, value=value)

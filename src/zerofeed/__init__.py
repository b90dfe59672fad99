"""
zerofeed: minibatch streaming and masked policy evaluation for
self-play game learning.
"""

from zerofeed.data.stream import RandomBatchStream, random_batches_stream
from zerofeed.errors import EmptyInputError, ShapeMismatchError
from zerofeed.network.evaluate import evaluate, evaluate_single
from zerofeed.rng import RngStream
from zerofeed.sampling import fix_probvec, rand_categorical
from zerofeed.smoothing import momentum_smoothing

__all__ = [
    "EmptyInputError",
    "RandomBatchStream",
    "RngStream",
    "ShapeMismatchError",
    "evaluate",
    "evaluate_single",
    "fix_probvec",
    "momentum_smoothing",
    "rand_categorical",
    "random_batches_stream",
]

"""
Sample batching and streaming.
"""

from zerofeed.data.batching import batch_ranges, batches, random_batches
from zerofeed.data.samples import SampleSet, load_samples, save_samples
from zerofeed.data.stream import RandomBatchStream, random_batches_stream

__all__ = [
    "RandomBatchStream",
    "SampleSet",
    "batch_ranges",
    "batches",
    "load_samples",
    "random_batches",
    "random_batches_stream",
    "save_samples",
]

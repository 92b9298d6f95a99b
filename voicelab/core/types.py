from dataclasses import dataclass
from typing import Union

import numpy as np
import torch


@dataclass
class SampleBuffer:
    """
    Decoded multichannel PCM audio.
    samples: float32 tensor shaped (channels, length), torchaudio's channel-first layout.
    Processing stages return new buffers; nothing mutates `samples` in place.
    """
    samples: torch.Tensor
    sample_rate: int

    def __post_init__(self):
        if not isinstance(self.samples, torch.Tensor):
            self.samples = torch.as_tensor(np.asarray(self.samples), dtype=torch.float32)
        if self.samples.dim() == 1:
            self.samples = self.samples.unsqueeze(0)
        if self.samples.dim() != 2 or self.samples.shape[0] < 1:
            raise ValueError(f"samples must be (channels, length), got shape {tuple(self.samples.shape)}")
        if int(self.sample_rate) <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        self.samples = self.samples.float()
        self.sample_rate = int(self.sample_rate)

    @property
    def num_channels(self) -> int:
        return self.samples.shape[0]

    @property
    def length(self) -> int:
        """Samples per channel."""
        return self.samples.shape[-1]

    @property
    def duration(self) -> float:
        return self.length / self.sample_rate

    def channel(self, index: int) -> torch.Tensor:
        return self.samples[index]

    def with_samples(self, samples: torch.Tensor) -> "SampleBuffer":
        """New buffer at the same sample rate."""
        return SampleBuffer(samples, self.sample_rate)

    def to_numpy(self) -> np.ndarray:
        return self.samples.detach().cpu().numpy()

    @classmethod
    def from_numpy(cls, data: Union[np.ndarray, list], sample_rate: int) -> "SampleBuffer":
        """Accepts mono (length,) or channel-first (channels, length) arrays."""
        arr = np.asarray(data, dtype=np.float32)
        return cls(torch.from_numpy(arr.copy()), sample_rate)

    @classmethod
    def silence(cls, channels: int, seconds: float, sample_rate: int) -> "SampleBuffer":
        return cls(torch.zeros(channels, int(seconds * sample_rate)), sample_rate)


@dataclass
class EditHistoryEntry:
    blob: bytes
    timestamp: float
    action: str

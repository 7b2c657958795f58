"""Tensor backend abstraction for running the spectral correlation on numpy, torch or cupy."""

import contextlib
import logging
import warnings
from abc import ABC, abstractmethod
from typing import Any, Generator, Optional

import numpy as np

ENGINES = ('numpy', 'torch', 'cupy')


class TensorBackend(ABC):
    """Abstract base class for tensor backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def is_gpu(self) -> bool:
        pass

    @abstractmethod
    def asarray(self, array: Any, dtype: Any = None) -> Any:
        pass

    @abstractmethod
    def asnumpy(self, array: Any) -> np.ndarray:
        pass

    @abstractmethod
    def fft2(self, array: Any) -> Any:
        pass

    @abstractmethod
    def ifft2(self, array: Any) -> Any:
        pass

    @abstractmethod
    def conjugate(self, array: Any) -> Any:
        pass

    @abstractmethod
    def cleanup_memory(self) -> None:
        pass


class NumpyBackend(TensorBackend):
    """NumPy tensor backend (CPU only)."""

    @property
    def name(self) -> str:
        return "numpy"

    @property
    def is_gpu(self) -> bool:
        return False

    def asarray(self, array: Any, dtype: Any = None) -> Any:
        return np.asarray(array, dtype=dtype)

    def asnumpy(self, array: Any) -> np.ndarray:
        return np.asarray(array)

    def fft2(self, array: Any) -> Any:
        return np.fft.fft2(array)

    def ifft2(self, array: Any) -> Any:
        # norm="backward" scales the inverse by 1/N
        return np.fft.ifft2(array, norm="backward")

    def conjugate(self, array: Any) -> Any:
        return np.conjugate(array)

    def cleanup_memory(self) -> None:
        pass  # No GPU memory to clean up


class TorchBackend(TensorBackend):
    """PyTorch tensor backend."""

    _DTYPES = {
        np.dtype(np.float32): 'float32',
        np.dtype(np.float64): 'float64',
        np.dtype(np.complex64): 'complex64',
        np.dtype(np.complex128): 'complex128',
    }

    def __init__(self):
        try:
            import torch
        except ImportError:
            raise ImportError("PyTorch not available")
        self.torch = torch
        self.device = 'cuda' if torch.cuda.is_available() else 'cpu'
        if self.device == 'cuda':
            try:
                torch.sum(torch.tensor([1.0, 2.0, 3.0], device='cuda'))
                torch.cuda.synchronize()
            except Exception as e:
                raise RuntimeError(f"PyTorch available but CUDA operations failed: {e}")

    @property
    def name(self) -> str:
        return "torch"

    @property
    def is_gpu(self) -> bool:
        return self.device == 'cuda'

    def asarray(self, array: Any, dtype: Any = None) -> Any:
        torch_dtype = None
        if dtype is not None:
            torch_dtype = getattr(self.torch, self._DTYPES[np.dtype(dtype)])
        return self.torch.as_tensor(np.asarray(array), device=self.device, dtype=torch_dtype)

    def asnumpy(self, array: Any) -> np.ndarray:
        return array.detach().cpu().numpy()

    def fft2(self, array: Any) -> Any:
        return self.torch.fft.fft2(array)

    def ifft2(self, array: Any) -> Any:
        return self.torch.fft.ifft2(array, norm="backward")

    def conjugate(self, array: Any) -> Any:
        return self.torch.conj(array)

    def cleanup_memory(self) -> None:
        if self.is_gpu:
            self.torch.cuda.empty_cache()


class CupyBackend(TensorBackend):
    """CuPy tensor backend."""

    def __init__(self):
        try:
            import cupy as cp
        except ImportError:
            raise ImportError("CuPy not available")
        self.cp = cp
        try:
            cp.sum(cp.array([1.0, 2.0, 3.0]))
            cp.cuda.Device().synchronize()
        except Exception as e:
            raise RuntimeError(f"CuPy available but CUDA operations failed: {e}")

    @property
    def name(self) -> str:
        return "cupy"

    @property
    def is_gpu(self) -> bool:
        return True

    def asarray(self, array: Any, dtype: Any = None) -> Any:
        return self.cp.asarray(array, dtype=dtype)

    def asnumpy(self, array: Any) -> np.ndarray:
        return self.cp.asnumpy(array)

    def fft2(self, array: Any) -> Any:
        return self.cp.fft.fft2(array)

    def ifft2(self, array: Any) -> Any:
        return self.cp.fft.ifft2(array, norm="backward")

    def conjugate(self, array: Any) -> Any:
        return self.cp.conjugate(array)

    def cleanup_memory(self) -> None:
        self.cp.get_default_memory_pool().free_all_blocks()
        self.cp.get_default_pinned_memory_pool().free_all_blocks()


_BACKEND_CLASSES = {
    'numpy': NumpyBackend,
    'torch': TorchBackend,
    'cupy': CupyBackend,
}


def create_tensor_backend(engine: Optional[str] = None, allow_fallback: bool = True) -> TensorBackend:
    """Create a tensor backend with optional automatic fallback.

    Args:
        engine: Preferred engine ('numpy', 'torch', 'cupy'), None for numpy
        allow_fallback: Whether to fall back to the remaining engines if the
            preferred one fails to initialize

    Returns:
        TensorBackend instance

    Raises:
        ValueError: If the engine name is unknown
        RuntimeError: If no backends are available
    """
    if engine is not None and engine not in _BACKEND_CLASSES:
        raise ValueError(f"Unknown tensor engine: {engine}. Available engines: {list(ENGINES)}")

    engines_to_try = [engine or 'numpy']
    if allow_fallback:
        engines_to_try.extend(e for e in ENGINES if e not in engines_to_try)

    for engine_name in engines_to_try:
        try:
            backend = _BACKEND_CLASSES[engine_name]()
        except (ImportError, RuntimeError) as e:
            warnings.warn(f"Failed to initialize {engine_name} backend: {e}")
            continue
        logging.debug(f"Using tensor backend: {backend.name} ({'GPU' if backend.is_gpu else 'CPU'})")
        return backend

    raise RuntimeError("No tensor backends available")


_backend: Optional[TensorBackend] = None


def get_tensor_backend() -> TensorBackend:
    """Return the module-level backend, creating the numpy one on first use."""
    global _backend
    if _backend is None:
        _backend = create_tensor_backend('numpy')
    return _backend


def set_tensor_backend(engine: Optional[str] = None, allow_fallback: bool = True) -> TensorBackend:
    """Replace the module-level backend and return it."""
    global _backend
    _backend = create_tensor_backend(engine, allow_fallback)
    return _backend


@contextlib.contextmanager
def use_tensor_backend(engine: Optional[str] = None,
                       allow_fallback: bool = True) -> Generator[TensorBackend, None, None]:
    """Switch the module-level backend for the duration of the block.

    The previous backend is put back on exit, also when the block raises.
    """
    global _backend
    previous = _backend
    try:
        yield set_tensor_backend(engine, allow_fallback)
    finally:
        _backend = previous

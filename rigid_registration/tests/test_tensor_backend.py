"""Tests for tensor backend selection."""
import numpy as np
import pytest

from rigid_registration import _tensor_backend
from rigid_registration._tensor_backend import (
    NumpyBackend,
    create_tensor_backend,
    get_tensor_backend,
    set_tensor_backend,
    use_tensor_backend,
)
from rigid_registration.correlation import spectral_correlation


@pytest.fixture(autouse=True)
def restore_backend():
    previous = _tensor_backend._backend
    yield
    _tensor_backend._backend = previous


def test_default_backend_is_numpy():
    backend = create_tensor_backend()
    assert isinstance(backend, NumpyBackend)
    assert backend.name == "numpy"
    assert not backend.is_gpu


def test_unknown_engine():
    with pytest.raises(ValueError):
        create_tensor_backend("jax")


def test_set_backend_is_used_by_correlation():
    backend = set_tensor_backend("numpy", allow_fallback=False)
    assert get_tensor_backend() is backend

    a = np.arange(12, dtype=np.float64).reshape(3, 4)
    surface = spectral_correlation(a, a)
    assert surface[0, 0] == pytest.approx(np.sum(a * a))


def test_numpy_fft_round_trip():
    backend = NumpyBackend()
    data = np.random.default_rng(0).normal(size=(8, 6))
    restored = backend.asnumpy(backend.ifft2(backend.fft2(backend.asarray(data))))
    np.testing.assert_allclose(restored.real, data, atol=1e-12)


def test_missing_optional_engine_falls_back(monkeypatch):
    def unavailable():
        raise ImportError("CuPy not available")

    monkeypatch.setitem(_tensor_backend._BACKEND_CLASSES, "cupy", unavailable)
    with pytest.warns(UserWarning):
        backend = create_tensor_backend("cupy", allow_fallback=True)
    assert backend.name in ("numpy", "torch")

    with pytest.raises(RuntimeError):
        with pytest.warns(UserWarning):
            create_tensor_backend("cupy", allow_fallback=False)


def test_use_backend_restores_previous():
    previous = set_tensor_backend("numpy")
    with use_tensor_backend("numpy", allow_fallback=False) as backend:
        assert get_tensor_backend() is backend
        assert backend is not previous
    assert get_tensor_backend() is previous

    with pytest.raises(KeyError):
        with use_tensor_backend("numpy"):
            raise KeyError("boom")
    assert get_tensor_backend() is previous

import numpy as np
import pytest

from forgeops.activations import clip, exp, gelu, relu, sigmoid, silu, tanh

X = np.array([-6.0, -2.5, -1.0, -0.25, 0.0, 0.25, 1.0, 2.5, 6.0], dtype=np.float32)


def test_relu_keeps_positive_and_zeroes_rest():
    out = relu(X)
    np.testing.assert_array_equal(out[X > 0], X[X > 0])
    assert not out[X <= 0].any()


def test_relu_nan_gives_zero():
    out = relu([np.nan, 3.0])
    assert out[0] == 0.0
    assert out[1] == 3.0


def test_relu_preserves_shape():
    data = X[:8].reshape(2, 4)
    assert relu(data).shape == (2, 4)


def test_sigmoid_at_zero():
    assert sigmoid([0.0])[0] == 0.5


def test_sigmoid_symmetry_and_bounds():
    s = sigmoid(X)
    np.testing.assert_allclose(s + sigmoid(-X), np.ones_like(X), atol=1e-6)
    assert np.all((s > 0) & (s < 1))
    assert np.all(np.diff(s) > 0)


def test_sigmoid_extreme_inputs_are_finite():
    out = sigmoid([-200.0, 200.0])
    assert np.all(np.isfinite(out))
    assert out[0] < out[1]


def test_silu_is_x_times_sigmoid():
    np.testing.assert_allclose(silu(X), X * sigmoid(X), rtol=1e-5, atol=1e-6)


def test_gelu_odd_part_is_identity():
    np.testing.assert_allclose(gelu(X) - gelu(-X), X, rtol=1e-5, atol=1e-6)


def test_gelu_approaches_relu_for_large_inputs():
    big = np.array([-10.0, 10.0], dtype=np.float32)
    np.testing.assert_allclose(gelu(big), relu(big), atol=1e-5)


def test_exp_inverts_log():
    y = np.array([0.5, 1.0, 2.0, 7.5], dtype=np.float32)
    np.testing.assert_allclose(exp(np.log(y)), y, rtol=1e-6)


def test_exp_sum_rule():
    a = np.array([0.3, -1.2, 2.0], dtype=np.float32)
    b = np.array([1.1, 0.4, -0.7], dtype=np.float32)
    np.testing.assert_allclose(exp(a + b), exp(a) * exp(b), rtol=1e-5)


def test_tanh_odd_and_bounded():
    t = tanh(X)
    np.testing.assert_allclose(t, -tanh(-X), atol=1e-7)
    assert np.all(np.abs(t) <= 1)


def test_tanh_relates_to_sigmoid():
    np.testing.assert_allclose(tanh(X), 2 * sigmoid(2 * X) - 1, atol=1e-5)


def test_clip_bounds_and_interior():
    out = clip(X, -1.0, 2.5)
    assert out.min() >= -1.0 and out.max() <= 2.5
    inside = (X >= -1.0) & (X <= 2.5)
    np.testing.assert_array_equal(out[inside], X[inside])
    assert np.all(out[X < -1.0] == -1.0)
    assert np.all(out[X > 2.5] == 2.5)


def test_clip_crossed_bounds_give_upper():
    out = clip(X, 3.0, -3.0)
    np.testing.assert_array_equal(out, np.full(X.shape, -3.0, dtype=np.float32))


def test_clip_passes_nan_through():
    out = clip([np.nan, 5.0], 0.0, 1.0)
    assert np.isnan(out[0])
    assert out[1] == 1.0


def test_missing_input_raises():
    with pytest.raises(ValueError):
        relu(None)
# pitchscope_dsp/analysis/kernels.py
# Boucles internes compilées (numba) : une passe par lag, accès strictement
# dans [0, len(x)), pas de padding.
import numpy as np
import numba


@numba.jit(nopython=True)
def difference_block(x, d, tau_start, tau_stop, stride):
    """
    d[τ] = Σ (x[i] - x[i+τ])²  pour i = 0, stride, 2·stride, ... < len(x) - τ
    Remplit d sur [tau_start, tau_stop).
    """
    n = x.size
    for tau in range(tau_start, tau_stop):
        acc = 0.0
        for i in range(0, n - tau, stride):
            diff = x[i] - x[i + tau]
            acc += diff * diff
        d[tau] = acc


@numba.jit(nopython=True)
def lag_product_means(x, out, stride):
    """
    out[τ] = moyenne de x[i]·x[i+τ] pour i = 0, stride, ... < len(x) - τ
    Moyenne (et non somme) : la troncature en bord de fenêtre ne biaise pas
    les grands lags. Zone de recouvrement vide → 0.
    """
    n = x.size
    for tau in range(out.size):
        acc = 0.0
        count = 0
        for i in range(0, n - tau, stride):
            acc += x[i] * x[i + tau]
            count += 1
        if count > 0:
            out[tau] = acc / count
        else:
            out[tau] = 0.0


@numba.jit(nopython=True)
def cumulative_mean_normalize(d, out):
    """
    out[0] = 1 ; out[τ] = d[τ]·τ / Σ_{j=1..τ} d[j], ou 1 si la somme est nulle.
    """
    out[0] = 1.0
    running = 0.0
    for tau in range(1, d.size):
        running += d[tau]
        if running == 0.0:
            out[tau] = 1.0
        else:
            out[tau] = d[tau] * tau / running


def empty_lag_array(size: int) -> np.ndarray:
    return np.zeros(max(int(size), 0), dtype=np.float64)

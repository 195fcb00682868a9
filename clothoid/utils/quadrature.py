import numpy as np

GAUSS_ORDER = 12

# Gauss-Legendre points and weights for the interval [-1, 1]
_GAUSS_POINTS, _GAUSS_WEIGHTS = np.polynomial.legendre.leggauss(GAUSS_ORDER)


def gauss_legendre_nodes(end: float, num_panels: int = 1):
    """
    Composite Gauss-Legendre rule over [0, end], split into num_panels panels of equal length.
    sum(weights * f(nodes)) approximates the integral of f from 0 to end, negative end included.

    :param end: upper integration limit
    :param num_panels: number of panels, at least 1
    :return: (nodes, weights), two 1D arrays of length num_panels * GAUSS_ORDER
    """
    edges = np.linspace(0., end, num_panels + 1)
    half_length = (edges[1:] - edges[:-1]) / 2
    midpoint = (edges[1:] + edges[:-1]) / 2
    nodes = midpoint[:, None] + half_length[:, None] * _GAUSS_POINTS[None, :]
    weights = half_length[:, None] * _GAUSS_WEIGHTS[None, :]
    return nodes.ravel(), weights.ravel()

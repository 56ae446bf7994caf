"""
Semidiscrete decomposition of a noisy low-rank tensor.

Builds a 3rd-order tensor from a few sign-pattern terms plus noise,
decomposes it, and plots the residual norm after each term.

Usage:
    python examples/demo.py
"""

import matplotlib.pyplot as plt
import numpy as np

from sddtensor import SDDConfig, TensorSDD

np.random.seed(0)
shape = (30, 20, 10)

# Ground truth: three sparse sign terms
A = np.zeros(shape)
for weight in (5.0, 3.0, 1.5):
    vectors = [np.random.choice([-1.0, 0.0, 1.0], size=m, p=[0.3, 0.4, 0.3]) for m in shape]
    A += weight * np.multiply.outer(np.multiply.outer(vectors[0], vectors[1]), vectors[2])
A += 0.1 * np.random.randn(*shape)

model = TensorSDD(SDDConfig(kmax=25, rhomin=0.1 * np.linalg.norm(A), verbose=True))
model.fit(A)

print(f"\nTerms: {model.n_terms_}")
print(f"Relative error: {model.relative_error():.4f}")
print(f"Inner iterations per term: {model.iterations_.tolist()}")

# Storage: one float per term plus 2 bits per vector entry
n_entries = sum(F.size for F in model.factors_)
print(f"Storage: {model.n_terms_} weights + {n_entries} sign entries vs {A.size} floats")

fig, ax = plt.subplots(figsize=(7, 4))
ax.semilogy(np.arange(1, model.n_terms_ + 1), np.sqrt(model.rho_), "o-")
ax.set_xlabel("Terms")
ax.set_ylabel("Residual Frobenius norm")
ax.set_title("Tensor SDD convergence")
ax.grid(True, which="both", alpha=0.3)
fig.tight_layout()
plt.show()

"""
Jackstraw significance of PCA gene loadings.

Determines which genes contribute non-randomly to each principal component by
comparing their observed loadings against a resampled null:

Per-replicate loop (replicate i uses seed i):
    1. Shuffle a random prop_freq fraction of genes across samples
    2. Re-run the PCA with the original settings
    3. Collect the shuffled genes' loadings for PCs 1..num_pc

The pooled null loadings for each PC form an empirical distribution; a gene's
p-value for a PC is the fraction of null magnitudes at least as large as its
observed magnitude. Loading signs are ignored since PC orientation is
arbitrary. No multiple-testing correction is applied.

Warning convention:
    warnings.warn() -- user-facing (parameter clamping, low prop_freq)
    logger.info() -- operator-facing (progress, run summary)

References:
    - Chung & Storey, Bioinformatics 2015 (jackstraw)
    - Macosko et al., Cell 2015 (application to single-cell PCA)
"""

from __future__ import annotations

import logging
import threading
import warnings
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy.stats import chi2_contingency

from jackstraw.core.dataset import ReductionHost
from jackstraw.core.errors import InsufficientDataError
from jackstraw.core.reduction import PCAConfig, pc_labels
from jackstraw.stats.null_model import (
    MIN_PERMUTED_FEATURES,
    jack_random,
    permuted_feature_count,
)

logger = logging.getLogger(__name__)

__all__ = [
    'JackStrawResult',
    'empirical_pvalues',
    'run_null_replicates',
    'run_jackstraw',
    'score_jackstraw',
]

ProgressCallback = Callable[[int, int], None]


@dataclass
class JackStrawResult:
    """Result of a jackstraw run.

    Attributes:
        empirical_p: Genes × PCs empirical p-values (columns PC1..PCk).
        fake_pc_scores: Pooled null loadings, one column per PC. Row count is
            num_replicate × n_permuted; replicate i occupies rows
            (i-1)*n_permuted .. i*n_permuted - 1.
        num_replicate: Number of replicates run.
        prop_freq: Fraction of genes shuffled per replicate (as requested).
        n_permuted: Genes actually shuffled per replicate.
        config: PCA settings the replicates reused.
        empirical_p_full: P-values for a projected (extended) gene set. Not
            computed by this package; always None.
        axis_scores: Per-PC summary from score_jackstraw(), if computed.
    """

    empirical_p: pd.DataFrame
    fake_pc_scores: pd.DataFrame
    num_replicate: int
    prop_freq: float
    n_permuted: int
    config: PCAConfig = field(default_factory=PCAConfig)
    empirical_p_full: Optional[pd.DataFrame] = None
    axis_scores: Optional[pd.DataFrame] = None

    @property
    def num_pc(self) -> int:
        return self.empirical_p.shape[1]

    @property
    def pc_names(self) -> list[str]:
        return list(self.empirical_p.columns)

    def to_dict(self) -> dict:
        """Serialize run parameters and summaries to a JSON-compatible dict."""
        summary = {
            "num_pc": self.num_pc,
            "num_replicate": self.num_replicate,
            "prop_freq": self.prop_freq,
            "n_permuted": self.n_permuted,
            "n_genes": int(self.empirical_p.shape[0]),
            "pca": self.config.to_dict(),
            "min_pvalue": {
                pc: float(self.empirical_p[pc].min()) for pc in self.pc_names
            },
        }
        if self.axis_scores is not None:
            summary["axis_scores"] = {
                pc: float(score) for pc, score in self.axis_scores["score"].items()
            }
        return summary


def empirical_pvalues(
    loadings: pd.DataFrame | NDArray[np.float64],
    null_scores: pd.DataFrame | NDArray[np.float64],
) -> pd.DataFrame:
    """
    Empirical p-value of every observed loading against the pooled null.

    For gene g and PC a:

        p(g, a) = #{v in null[:, a] : |v| >= |L[g, a]|} / len(null[:, a])

    Ties count toward the tail, and there is no +1 correction, so a gene
    more extreme than every null value gets exactly 0.

    Args:
        loadings: Observed loadings (n_genes, n_pcs). If a DataFrame, its
            index labels the result rows.
        null_scores: Pooled null loadings (n_null, n_pcs), columns aligned
            with loadings by position.

    Returns:
        DataFrame (n_genes, n_pcs) with columns PC1..PCk.

    Raises:
        ValueError: If PC counts differ or the null pool is empty.
    """
    index = loadings.index if isinstance(loadings, pd.DataFrame) else None
    observed = np.abs(np.asarray(loadings, dtype=np.float64))
    null = np.abs(np.asarray(null_scores, dtype=np.float64))

    if observed.ndim != 2 or null.ndim != 2:
        raise ValueError("loadings and null_scores must be 2D")
    if observed.shape[1] != null.shape[1]:
        raise ValueError(
            f"loadings have {observed.shape[1]} PCs but null has {null.shape[1]}"
        )
    n_null = null.shape[0]
    if n_null == 0:
        raise ValueError("null distribution is empty")

    pvals = np.empty_like(observed)
    for a in range(observed.shape[1]):
        sorted_null = np.sort(null[:, a])
        # values at or above |L| sit from the left insertion point onwards
        n_tail = n_null - np.searchsorted(sorted_null, observed[:, a], side="left")
        pvals[:, a] = n_tail / n_null

    return pd.DataFrame(pvals, index=index, columns=pc_labels(observed.shape[1]))


def _no_progress(seed: int, total: int) -> None:
    pass


def _make_progress_logger(total: int) -> ProgressCallback:
    """Thread-safe progress callback logging roughly every 10% of replicates."""
    lock = threading.Lock()
    state = {"done": 0}
    step = max(1, total // 10)

    def report(seed: int, total: int) -> None:
        with lock:
            state["done"] += 1
            count = state["done"]
        if count % step == 0 or count == total:
            logger.info(f"  Replicate {count}/{total}...")

    return report


def run_null_replicates(
    scaled_data: NDArray[np.float64],
    num_pc: int,
    num_replicate: int,
    prop_freq: float,
    config: PCAConfig,
    do_print: bool = False,
    n_jobs: int = 1,
) -> NDArray[np.float64]:
    """
    Run all jackstraw replicates and pool their null loadings.

    Replicate i (1-based) is seeded with i, so the pool is reproducible and
    independent of execution order. Replicates share the read-only input and
    run on a thread pool (the SVD releases the GIL).

    Args:
        scaled_data: Scaled matrix (n_genes, n_samples) in PCA row order.
        num_pc: PCs 1..num_pc are collected.
        num_replicate: Number of replicates.
        prop_freq: Fraction of genes shuffled per replicate.
        config: Original PCA settings.
        do_print: Log replicate progress.
        n_jobs: Parallel workers (-1 for all CPUs).

    Returns:
        Array (num_replicate * n_permuted, num_pc), replicates stacked in
        seed order.

    Raises:
        DegeneratePCAError: If any replicate's PCA fails. The whole run is
            aborted; failed replicates are never skipped or reseeded.
    """
    from joblib import Parallel, delayed

    progress = _make_progress_logger(num_replicate) if do_print else _no_progress

    def run_replicate(seed: int) -> NDArray[np.float64]:
        fake = jack_random(
            scaled_data,
            prop_freq=prop_freq,
            r1_use=1,
            r2_use=num_pc,
            seed=seed,
            config=config,
        )
        progress(seed, num_replicate)
        return fake

    replicates = Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(run_replicate)(seed) for seed in range(1, num_replicate + 1)
    )

    return np.vstack(replicates)


def run_jackstraw(
    dataset: ReductionHost,
    num_pc: int = 20,
    num_replicate: int = 100,
    prop_freq: float = 0.01,
    do_print: bool = False,
    n_jobs: int = 1,
) -> JackStrawResult:
    """
    Determine statistical significance of PCA gene loadings.

    Randomly permutes a subset of the scaled data, recomputes the PCA and
    compares the 'random' genes' loadings with the observed ones. The result
    is stored on the dataset (replacing any previous jackstraw) and returned.

    Args:
        dataset: Host with a computed PCA.
        num_pc: Number of PCs to compute significance for. Clamped, with a
            warning, to the PCs available and to the number of samples.
        num_replicate: Number of replicate samplings.
        prop_freq: Proportion of genes to permute per replicate. At least
            3 genes are always permuted.
        do_print: Log the number of replicates processed.
        n_jobs: Parallel workers for replicates.

    Returns:
        JackStrawResult with empirical p-values for every PCA gene.

    Raises:
        ConfigMissingError: If the dataset has no PCA.
        InsufficientDataError: If the PCA used fewer than 3 genes.
        ValueError: If num_pc, num_replicate or prop_freq is out of range.

    Example:
        >>> dataset.run_pca(pcs_compute=20)
        >>> result = run_jackstraw(dataset, num_pc=10, num_replicate=100)
        >>> (result.empirical_p["PC1"] < 0.01).sum()
    """
    embeddings = dataset.get_pca_embeddings()

    if num_pc < 1:
        raise ValueError(f"num_pc must be >= 1, got {num_pc}")
    if num_replicate < 1:
        raise ValueError(f"num_replicate must be >= 1, got {num_replicate}")
    if not 0 < prop_freq <= 1:
        raise ValueError(f"prop_freq must be in (0, 1], got {prop_freq}")

    n_available = embeddings.shape[1]
    if num_pc > n_available:
        num_pc = n_available
        warnings.warn(
            "Number of PCs specified is greater than PCs available. "
            f"Setting num_pc to {num_pc} and continuing.",
            stacklevel=2,
        )
    n_samples = embeddings.shape[0]
    if num_pc > n_samples:
        num_pc = n_samples
        warnings.warn(
            "Number of PCs specified is greater than number of samples. "
            f"Setting num_pc to {num_pc} and continuing.",
            stacklevel=2,
        )

    loadings = dataset.get_pca_loadings()
    pc_genes = loadings.index
    if len(pc_genes) < MIN_PERMUTED_FEATURES:
        raise InsufficientDataError(
            f"Too few variable genes: {len(pc_genes)} "
            f"(need at least {MIN_PERMUTED_FEATURES})"
        )
    if len(pc_genes) * prop_freq < MIN_PERMUTED_FEATURES:
        warnings.warn(
            f"Number of variable genes given {prop_freq} as the prop_freq is low. "
            "Consider including more variable genes and/or increasing prop_freq. "
            f"Continuing with {MIN_PERMUTED_FEATURES} genes in every random sampling.",
            stacklevel=2,
        )

    config = dataset.get_pca_config()
    scaled = dataset.get_scaled_data(pc_genes)
    n_permuted = permuted_feature_count(len(pc_genes), prop_freq)

    logger.info(
        f"Jackstraw: {num_replicate} replicates, {num_pc} PCs, "
        f"{n_permuted}/{len(pc_genes)} genes permuted per replicate"
    )

    null = run_null_replicates(
        scaled.data,
        num_pc=num_pc,
        num_replicate=num_replicate,
        prop_freq=prop_freq,
        config=config,
        do_print=do_print,
        n_jobs=n_jobs,
    )

    columns = pc_labels(num_pc)
    observed = loadings.iloc[:, :num_pc]
    empirical_p = empirical_pvalues(observed, null)

    result = JackStrawResult(
        empirical_p=empirical_p,
        fake_pc_scores=pd.DataFrame(null, columns=columns),
        num_replicate=num_replicate,
        prop_freq=prop_freq,
        n_permuted=n_permuted,
        config=config,
    )
    dataset.set_jackstraw(result)
    return result


def score_jackstraw(
    result: JackStrawResult,
    score_thresh: float = 1e-5,
) -> pd.DataFrame:
    """
    Overall significance of each PC from its gene p-values.

    Compares the number of genes with p <= score_thresh against the number
    expected under a uniform null (floor(n_genes * score_thresh)) with a
    two-sample test of equal proportions (chi-square, Yates correction).
    A PC with many more significant genes than expected gets a small score.

    The table is also stored on ``result.axis_scores``.

    Returns:
        DataFrame indexed PC1..PCk with columns n_significant, expected, score.
        PCs where both counts are 0 (or both equal n_genes) carry no
        information and score 1.0.
    """
    if not 0 < score_thresh < 1:
        raise ValueError(f"score_thresh must be in (0, 1), got {score_thresh}")

    pvals = result.empirical_p
    n = pvals.shape[0]
    expected = int(np.floor(n * score_thresh))

    rows = []
    for pc in pvals.columns:
        observed = int((pvals[pc] <= score_thresh).sum())
        if observed + expected in (0, 2 * n):
            score = 1.0
        else:
            table = np.array([[observed, n - observed], [expected, n - expected]])
            _, score, _, _ = chi2_contingency(table, correction=True)
        rows.append({"n_significant": observed, "expected": expected, "score": float(score)})

    scores = pd.DataFrame(rows, index=pd.Index(pvals.columns, name="pc"))
    result.axis_scores = scores
    return scores

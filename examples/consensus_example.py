from sklearn.datasets import make_blobs
import numpy as np
import pandas as pd

from neatmaps.preprocessing import scale_columns
from neatmaps.consensus import ConsensusClustering

# Set random seed for reproducibility
np.random.seed(42)

X, y = make_blobs(n_samples=60, n_features=4, centers=3, cluster_std=0.8, random_state=0)
df = pd.DataFrame(X, index=[f"net_{i}" for i in range(X.shape[0])],
                  columns=[f"var_{j}" for j in range(X.shape[1])])

# Scale columns before clustering
df = scale_columns(df, method="normalize")

consensus = ConsensusClustering(
        max_k=6,
        reps=200,
        p_net=0.8,
        p_var=1.0,
        link_method="average",
        dist_method="euclidean",
        random_state=1,
        verbose=True
    )
results = consensus.fit_transform(df)

print(results.summary())
print(results.to_frame().head())

# Compare with the generating labels
best = results[3]
print(pd.crosstab(best.labels, y))

"""HTTP gateway over the job store and pipeline executor."""

"""
Quickstart: run the pretrial equity pipeline on the synthetic sample
"""

from pretrial_equity import Config, make_pretrial_sample, run_pipeline


def main():
    print("=" * 80)
    print("PRETRIAL EQUITY PIPELINE - QUICKSTART")
    print("=" * 80)

    raw, catalog = make_pretrial_sample(3000, sentinel_rate=0.1)
    config = Config(
        output_folder="output_quickstart",
        n_trees_grid=[100, 200, 300],
        depth_grid=[2, 3],
        shrinkage_grid=[0.05, 0.1],
        sample_size=1000,
    )
    pipe = run_pipeline(raw, catalog, config)

    print("\nModels:")
    for variant, stats in pipe.metrics_["models"].items():
        print(f"  {variant:<14} accuracy={stats['test_accuracy']:.3f} params={stats['best_params']}")

    print("\nJudge vs model accuracy by group:")
    print(pipe.table("accuracy_comparison").to_string(index=False))
    print(f"\nReports written to {config.output_folder}")


if __name__ == "__main__":
    main()

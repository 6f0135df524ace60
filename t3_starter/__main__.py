from t3_starter.pipeline import main

main()

from seo_scout.cli import main

main()

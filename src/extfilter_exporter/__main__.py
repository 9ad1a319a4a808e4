from extfilter_exporter.cli import main

main()

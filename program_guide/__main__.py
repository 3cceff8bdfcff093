from program_guide.main import run

run()

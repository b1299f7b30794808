"""ScribeFlow - upload a video to a blob store and transcribe it."""

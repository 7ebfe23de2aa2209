"""Runtime modules copied into every generated client package."""
